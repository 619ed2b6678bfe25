# Copyright (c) MEGVII Inc. and its affiliates. All Rights Reserved.


class BitType:

    def __init__(self, bits, signed, name=None):
        if not isinstance(bits, int) or bits < 1:
            raise ValueError(f"bits must be a positive integer, got {bits!r}")
        self.bits = bits
        self.signed = signed
        if name is not None:
            self.name = name
        else:
            self.update_name()

    @property
    def upper_bound(self):
        if not self.signed:
            return 2**self.bits - 1
        return 2**(self.bits - 1) - 1

    @property
    def lower_bound(self):
        if not self.signed:
            return 0
        return -(2**(self.bits - 1))

    @property
    def magnitude_bits(self):
        """Bits left for the magnitude once the sign bit is reserved"""
        return self.bits - 1 if self.signed else self.bits

    def update_name(self):
        self.name = ''
        if not self.signed:
            self.name += 'uint'
        else:
            self.name += 'int'
        self.name += '{}'.format(self.bits)

    def __repr__(self):
        return f"BitType(bits={self.bits}, signed={self.signed}, name={self.name!r})"

    def __eq__(self, other):
        if not isinstance(other, BitType):
            return NotImplemented
        return self.bits == other.bits and self.signed == other.signed

    def __hash__(self):
        return hash((self.bits, self.signed))

"""Error taxonomy of the calibration quantizer."""


class QuantizationError(Exception):
    """Base class for every error raised by the quantizer."""


class EmptySampleSet(QuantizationError, ValueError):
    """A calibration batch carried no samples."""


class InvalidRange(QuantizationError, ValueError):
    """A value range with min > max or a NaN endpoint."""


class UnknownTensor(QuantizationError, KeyError):
    """A range was requested for a tensor that was never recorded."""

    def __init__(self, tensor_id):
        super().__init__(tensor_id)
        self.tensor_id = tensor_id

    def __str__(self):
        return f"No range recorded for tensor {self.tensor_id!r}"


class InvalidSignedValue(QuantizationError, ValueError):
    """Signed fixed-point encoding was requested for a negative value."""


class InvalidQuantizationState(QuantizationError, RuntimeError):
    """
    An invariant of parameter derivation or fixed-point encoding broke.

    The keyword arguments describe the offending input and result
    (value, bits, shift, ...) and are kept as ``context``.
    """

    def __init__(self, message, **context):
        details = ', '.join(f"{k}={v!r}" for k, v in context.items())
        super().__init__(f"{message} ({details})" if details else message)
        self.context = context

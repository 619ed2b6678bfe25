import torch
import torch.nn.functional as F

from ..bit_type import BitType
from ..layer_quantizer import UniformQuantizer


class StatProfiler:
    @staticmethod
    def compute(original: torch.Tensor, quantized: torch.Tensor) -> dict:
        original = original.detach().to(torch.float32).flatten()
        quantized = quantized.detach().to(torch.float32).flatten()
        return {
            # Fake-quantized statistics
            'min': quantized.min().item(),
            'max': quantized.max().item(),
            'mean': quantized.mean().item(),
            'std': quantized.std().item(),

            # Original (FP32) statistics
            'original_min': original.min().item(),
            'original_max': original.max().item(),
            'original_mean': original.mean().item(),
            'original_std': original.std().item(),

            # Comparison metrics
            'mse': F.mse_loss(original, quantized).item(),
            'cosine_sim': F.cosine_similarity(
                original.unsqueeze(0),
                quantized.unsqueeze(0)
            ).item(),
            'qsnr': StatProfiler._qsnr(original, quantized),
        }

    @staticmethod
    def _qsnr(original, quantized):
        # QSNR = 10 * log10(signal_power / noise_power)
        noise = original - quantized
        signal_power = (original ** 2).mean()
        noise_power = (noise ** 2).mean() + 1e-10
        return (10 * torch.log10(signal_power / noise_power)).item()

    @staticmethod
    def profile(quantizer, tensor_id, samples, bits=None) -> dict:
        """Fake-quantize samples with the tensor's derived params and compare."""
        config = quantizer.get_config(tensor_id)
        if bits is None:
            bits = config.bit_type.bits
        quant_param = quantizer.get_quant_param(tensor_id, bits)

        uniform = UniformQuantizer(BitType(bits=bits, signed=False), min_range=config.min_range)
        uniform.update_quantization_params(quant_param)

        original = torch.as_tensor(samples, dtype=torch.float32)
        stats = StatProfiler.compute(original, uniform(original))
        stats['scale'] = quant_param.scale
        stats['bias'] = quant_param.bias
        return stats

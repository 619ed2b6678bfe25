"""YAML configuration loader for quantization settings"""
import logging
from pathlib import Path
from typing import Union

import yaml

from quant_config import QuantConfig, BitTypeConfig, FixedMulConfig, LayerQuantConfig

logger = logging.getLogger(__name__)

_NESTED_KEYS = ('bit_type', 'fixed_mul')


def load_config_from_yaml(yaml_path: Union[str, Path]) -> LayerQuantConfig:
    """
    Load quantization configuration from a YAML file.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        LayerQuantConfig object with default and tensor-specific configurations

    Example YAML structure:
        default:
          bit_type:
            bits: 8
            signed: false
            name: uint8
          fixed_mul:
            max_bits: 32
            max_shift: 31
            signed: true
          min_range: 0.001

        tensors:
          conv1.output:
            bit_type:
              bits: 16
              name: uint16
          fc.output:
            # Uses default config

    Example usage:
        config = load_config_from_yaml('configs/quant_config_uint8.yaml')
        quantizer = Quantizer(config)
    """
    yaml_path = Path(yaml_path)

    if not yaml_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

    with open(yaml_path, 'r') as f:
        config_dict = yaml.safe_load(f) or {}

    default_dict = config_dict.get('default') or {}
    layer_configs = _parse_tensor_section(default_dict, config_dict.get('tensors') or {})

    logger.info("Loaded quantization config from %s (%d tensor overrides)",
                yaml_path, len(layer_configs))
    return LayerQuantConfig(
        default_config=_parse_quant_config(default_dict),
        layer_configs=layer_configs
    )


def _merge_with_default(default_dict: dict, layer_dict: dict) -> dict:
    """Tensor entry overrides default; nested sections are merged key by key"""
    merged_dict = {**default_dict, **layer_dict}
    for key in _NESTED_KEYS:
        if key in layer_dict and key in default_dict:
            merged_dict[key] = {**default_dict[key], **layer_dict[key]}
    return merged_dict


def _parse_tensor_section(default_dict: dict, tensors_dict: dict) -> dict:
    layer_configs = {}
    for layer_name, layer_dict in tensors_dict.items():
        if layer_dict is None or not layer_dict:
            # Empty entry means use default config
            continue
        layer_configs[str(layer_name)] = _parse_quant_config(
            _merge_with_default(default_dict, layer_dict))
    return layer_configs


def _parse_quant_config(config_dict: dict) -> QuantConfig:
    """Parse dictionary into QuantConfig object"""
    bit_type_dict = config_dict.get('bit_type') or {}
    bit_type = BitTypeConfig(
        bits=int(bit_type_dict.get('bits', 8)),
        signed=bool(bit_type_dict.get('signed', False)),
        name=bit_type_dict.get('name', 'uint8')
    )

    fixed_mul_dict = config_dict.get('fixed_mul') or {}
    eps = fixed_mul_dict.get('eps')
    fixed_mul = FixedMulConfig(
        max_bits=int(fixed_mul_dict.get('max_bits', 32)),
        max_shift=int(fixed_mul_dict.get('max_shift', 31)),
        signed=bool(fixed_mul_dict.get('signed', True)),
        eps=float(eps) if eps is not None else None
    )

    min_range = float(config_dict.get('min_range', 0.001))
    if min_range <= 0:
        raise ValueError(f"min_range must be positive, got {min_range}")

    return QuantConfig(
        bit_type=bit_type,
        fixed_mul=fixed_mul,
        min_range=min_range
    )


def save_config_to_yaml(layer_config: LayerQuantConfig, yaml_path: Union[str, Path]):
    """
    Save LayerQuantConfig to YAML file.

    Args:
        layer_config: LayerQuantConfig object to save
        yaml_path: Output path for YAML file
    """
    yaml_path = Path(yaml_path)

    config_dict = {
        'default': _quant_config_to_dict(layer_config.default_config),
        'tensors': {}
    }

    for layer_name, layer_quant_config in layer_config.layer_configs.items():
        config_dict['tensors'][layer_name] = _quant_config_to_dict(layer_quant_config)

    yaml_path.parent.mkdir(parents=True, exist_ok=True)
    with open(yaml_path, 'w') as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)


def _quant_config_to_dict(config: QuantConfig) -> dict:
    """Convert QuantConfig to dictionary"""
    return {
        'bit_type': {
            'bits': config.bit_type.bits,
            'signed': config.bit_type.signed,
            'name': config.bit_type.name
        },
        'fixed_mul': {
            'max_bits': config.fixed_mul.max_bits,
            'max_shift': config.fixed_mul.max_shift,
            'signed': config.fixed_mul.signed,
            'eps': config.fixed_mul.eps
        },
        'min_range': config.min_range
    }


def load_multi_config_from_yaml(*yaml_paths: Union[str, Path]) -> LayerQuantConfig:
    """
    Load quantization configuration from several YAML files and merge them.

    The first file's `default` section is the global default; `tensors`
    sections of later files override earlier ones.

    Example usage:
        config = load_multi_config_from_yaml(
            'configs/target.yaml',
            'configs/model_overrides.yaml'
        )
    """
    all_config_dicts = []
    for config_path in yaml_paths:
        config_path = Path(config_path)
        if config_path.exists():
            with open(config_path, 'r') as f:
                all_config_dicts.append(yaml.safe_load(f) or {})
        else:
            logger.warning("Config file not found: %s", config_path)

    if not all_config_dicts:
        raise ValueError("No valid configuration files found")

    default_dict = all_config_dicts[0].get('default') or {}

    layer_configs = {}
    for config_dict in all_config_dicts:
        layer_configs.update(
            _parse_tensor_section(default_dict, config_dict.get('tensors') or {}))

    return LayerQuantConfig(
        default_config=_parse_quant_config(default_dict),
        layer_configs=layer_configs
    )

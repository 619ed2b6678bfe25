"""
Quantization Parameter Log Editor

Saves the result of a calibration run:
- per-tensor range and derived params as a CSV table
- JSON summary (ranges, params, config)
- timestamped output folder
"""

import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from ptq.quantizer import tensor_name

logger = logging.getLogger(__name__)

CSV_FIELDS = ['tensor', 'min', 'max', 'bits', 'scale', 'bias']


def _tensor_label(tensor_id) -> str:
    return tensor_name(tensor_id) or repr(tensor_id)


def collect_quant_params(quantizer, bits: Optional[int] = None) -> list:
    """Rows of (tensor, min, max, bits, scale, bias) for every recorded tensor"""
    rows = []
    for tensor_id, value_range in quantizer.items():
        tensor_bits = bits if bits is not None else quantizer.get_config(tensor_id).bit_type.bits
        quant_param = quantizer.get_quant_param(tensor_id, tensor_bits)
        rows.append({
            'tensor': _tensor_label(tensor_id),
            'min': value_range.min,
            'max': value_range.max,
            'bits': tensor_bits,
            'scale': quant_param.scale,
            'bias': quant_param.bias,
        })
    rows.sort(key=lambda row: row['tensor'])
    return rows


def save_quant_params(
    quantizer,
    base_log_dir: str = "log",
    bits: Optional[int] = None,
    prefix: str = "quant_params"
) -> Dict[str, Any]:
    """
    Save derived quantization params of every recorded tensor.

    Args:
        quantizer: calibrated Quantizer
        base_log_dir: base log directory (default: "log")
        bits: bit-width for all tensors; per-tensor config when None
        prefix: file prefix (default: "quant_params")

    Returns:
        dict: saved file paths
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    save_dir = Path(base_log_dir) / timestamp
    save_dir.mkdir(parents=True, exist_ok=True)

    rows = collect_quant_params(quantizer, bits)

    csv_path = save_dir / f"{prefix}.csv"
    with open(csv_path, 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        writer.writerows(rows)

    summary = {
        'timestamp': timestamp,
        'total_tensors': len(rows),
        'tensors': {row['tensor']: {k: v for k, v in row.items() if k != 'tensor'} for row in rows},
    }
    json_path = save_dir / f"{prefix}_summary.json"
    with open(json_path, 'w') as f:
        json.dump(summary, f, indent=2)

    logger.info("Saved quantization params of %d tensors to %s", len(rows), save_dir)
    return {
        'directory': str(save_dir),
        'csv': str(csv_path),
        'summary': str(json_path),
    }

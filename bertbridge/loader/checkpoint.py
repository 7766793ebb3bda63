"""Checkpoint loading for numpy, PyTorch and safetensors files.

A TensorFlow BERT checkpoint is read outside this package and dumped to a
flat name → array file (`.npz` is the usual choice, keys like
`bert/encoder/layer_0/attention/self/query/kernel`). This module turns such
files, and the usual torch formats, into an in-memory state_dict.
"""
from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import torch
from safetensors.torch import load_file
from torch import Tensor


def _get_torch_version() -> tuple[int, int]:
    """Parse PyTorch version into (major, minor) tuple."""
    version_str = torch.__version__.split("+")[0]
    parts = version_str.split(".")
    return int(parts[0]), int(parts[1])


def _safe_torch_load(path: Path) -> dict[str, Tensor]:
    """Load a torch checkpoint without executing arbitrary pickles.

    Uses weights_only=True when available (PyTorch ≥2.4).
    """
    major, minor = _get_torch_version()

    if (major, minor) >= (2, 4):
        state = torch.load(path, map_location="cpu", weights_only=True)
    else:
        state = torch.load(path, map_location="cpu")
    if not isinstance(state, dict):
        raise ValueError(f"Checkpoint {path} is not a state_dict, got {type(state)!r}")
    return state


class CheckpointLoader:
    """Loads state dictionaries from various checkpoint formats.

    Supports:
    - numpy archives (.npz), the export format for TF checkpoints
    - Single-file PyTorch checkpoints (.pt, .bin)
    - Single-file safetensors (.safetensors)
    - Sharded checkpoints with index files (.index.json)
    """

    def load(self, path: Path) -> dict[str, Tensor]:
        """Load a state_dict, auto-detecting the format from file extension.

        For sharded checkpoints, pass the .index.json file and this will
        load all shards and merge them.
        """
        path = Path(path)
        if not path.exists():
            raise ValueError(f"Checkpoint not found: {path}")
        if path.name.endswith(".index.json"):
            return self.load_sharded(path)
        match path.suffix:
            case ".npz":
                return self.load_npz(path)
            case ".safetensors":
                return self.load_safetensors(path)
            case ".pt" | ".pth" | ".bin":
                return _safe_torch_load(path)
            case s:
                raise ValueError(f"Unsupported checkpoint format '{s}' for {path}")

    def load_npz(self, path: Path) -> dict[str, Tensor]:
        """Load a numpy archive of named arrays."""
        out: dict[str, Tensor] = {}
        with np.load(path, allow_pickle=False) as archive:
            for key in archive.files:
                array = archive[key]
                if not np.issubdtype(array.dtype, np.number):
                    raise ValueError(f"Array {key} in {path} is not numeric: {array.dtype}")
                out[key] = torch.from_numpy(np.ascontiguousarray(array))
        return out

    def load_sharded(self, index_path: Path) -> dict[str, Tensor]:
        """Load a sharded checkpoint from its index file.

        The index file maps weight names to shard files.
        """
        data = json.loads(index_path.read_text(encoding="utf-8"))
        weight_map = data.get("weight_map")
        if not isinstance(weight_map, dict):
            raise ValueError("Invalid index file: missing weight_map")

        out: dict[str, Tensor] = {}
        for shard in sorted(set(weight_map.values())):
            shard_path = index_path.parent / shard
            if shard_path.name.endswith(".index.json"):
                raise ValueError(
                    f"Shard {shard} is an index file, expected tensor file"
                )
            for key, value in self.load(shard_path).items():
                if key in out:
                    raise ValueError(f"Duplicate key in shards: {key}")
                out[key] = value
        return out

    def load_safetensors(self, path: Path) -> dict[str, Tensor]:
        return load_file(str(path), device="cpu")

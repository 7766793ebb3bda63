"""Checkpoint loading utilities for pretrained weights.

Checkpoints come in different formats (numpy dumps of TF checkpoints,
PyTorch, safetensors, sharded). This package reads all of them into a plain
state_dict; mapping names onto a model is `bertbridge.translate`'s job.
"""
from __future__ import annotations

from bertbridge.loader.checkpoint import CheckpointLoader

__all__ = ["CheckpointLoader"]

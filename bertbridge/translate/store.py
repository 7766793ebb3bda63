"""Stores the translator reads from and writes to.

The translator never touches a checkpoint dict or an nn.Module directly.
It goes through two narrow interfaces:

- CheckpointStore: name → ShapedTensor, read-only
- ParameterStore: name → ParameterHandle, with a fixed, enumerable name set

The name set of a parameter store is computed once at construction, so the
coverage check and the driver always agree on what the model contains.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

import torch
from torch import Tensor, nn

from bertbridge.translate.errors import (
    InvalidSourceTensor,
    MissingSourceTensor,
    MissingTargetParameter,
    ShapeMismatch,
)
from bertbridge.translate.tensor import ShapedTensor


class CheckpointStore(Protocol):
    def lookup(self, name: str) -> ShapedTensor:
        ...


class ParameterStore(Protocol):
    def lookup(self, name: str) -> "ParameterHandle":
        ...

    def names(self) -> tuple[str, ...]:
        ...


class TensorCheckpointStore:
    """Validated read access to a flat checkpoint state_dict.

    Fails with MissingSourceTensor instead of a bare KeyError, and with
    InvalidSourceTensor for values that are not tensors.
    """

    def __init__(self, state_dict: Mapping[str, Tensor]) -> None:
        self.state_dict = state_dict

    def __contains__(self, name: str) -> bool:
        return name in self.state_dict

    def __len__(self) -> int:
        return len(self.state_dict)

    def lookup(self, name: str) -> ShapedTensor:
        if name not in self.state_dict:
            raise MissingSourceTensor(name)
        value = self.state_dict[name]
        if not isinstance(value, Tensor):
            raise InvalidSourceTensor(name, value)
        return ShapedTensor.from_tensor(value)


@dataclass(frozen=True, slots=True)
class ParameterHandle:
    """Write access to one named target tensor."""

    name: str
    tensor: Tensor

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(int(d) for d in self.tensor.shape)

    def assign(self, value: ShapedTensor) -> None:
        """Overwrite the tensor's values in place.

        The tensor object, its shape, dtype and device are unchanged.
        """
        if value.shape != self.shape:
            raise ShapeMismatch.for_target(self.name, self.shape, value.shape)
        with torch.no_grad():
            self.tensor.copy_(value.view().to(dtype=self.tensor.dtype, device=self.tensor.device))


class TensorParameterStore:
    """Parameter store over a plain name → tensor mapping."""

    def __init__(self, tensors: Mapping[str, Tensor]) -> None:
        self._tensors = dict(tensors)
        self._names = tuple(self._tensors)

    def names(self) -> tuple[str, ...]:
        return self._names

    def lookup(self, name: str) -> ParameterHandle:
        if name not in self._tensors:
            raise MissingTargetParameter(name)
        return ParameterHandle(name=name, tensor=self._tensors[name])


class ModuleParameterStore(TensorParameterStore):
    """Parameter store over a module's learnable parameters.

    Only `named_parameters()` is included; buffers are not learnable and are
    not mapped.
    """

    def __init__(self, module: nn.Module) -> None:
        super().__init__(dict(module.named_parameters()))
        self.module = module

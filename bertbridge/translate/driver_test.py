"""
driver_test provides tests for translate().
"""
from __future__ import annotations

import unittest

import torch

from bertbridge.translate.driver import translate
from bertbridge.translate.errors import (
    ErrorKind,
    InvalidLayerCount,
    InvalidSourceTensor,
    MissingSourceTensor,
    MissingTargetParameter,
    SchemaError,
    ShapeMismatch,
)
from bertbridge.translate.schema import MappingEntry, MappingSchema, Op
from bertbridge.translate.store import ParameterHandle, TensorCheckpointStore, TensorParameterStore

SCHEMA = MappingSchema(
    [
        MappingEntry.of("layers.#.qkv", ["layer_#/q", "layer_#/k"], Op.STACK),
        MappingEntry.of("layers.#.bias", ["layer_#/qb", "layer_#/kb"], Op.CONCAT),
        MappingEntry.of("head.w", "head/kernel", Op.TRANSPOSE),
        MappingEntry.of("head.b", "head/bias", Op.IDENTITY),
    ],
    name="tiny",
)


def _checkpoint(prefix: str = "") -> dict[str, torch.Tensor]:
    p = f"{prefix}/" if prefix else ""
    out: dict[str, torch.Tensor] = {}
    for i in range(2):
        out[f"{p}layer_{i}/q"] = torch.full((2, 3), float(10 * i + 1))
        out[f"{p}layer_{i}/k"] = torch.full((1, 3), float(10 * i + 2))
        out[f"{p}layer_{i}/qb"] = torch.tensor([float(i), 1.0])
        out[f"{p}layer_{i}/kb"] = torch.tensor([2.0])
    out[f"{p}head/kernel"] = torch.arange(6, dtype=torch.float32).reshape(3, 2)
    out[f"{p}head/bias"] = torch.tensor([7.0, 8.0])
    return out


def _parameters() -> dict[str, torch.Tensor]:
    out: dict[str, torch.Tensor] = {}
    for i in range(2):
        out[f"layers.{i}.qkv"] = torch.zeros(3, 3)
        out[f"layers.{i}.bias"] = torch.zeros(3)
    out["head.w"] = torch.zeros(2, 3)
    out["head.b"] = torch.zeros(2)
    return out


class TranslateTest(unittest.TestCase):
    """
    TranslateTest provides tests for the translator driver.
    """
    def test_writes_every_parameter(self) -> None:
        params = _parameters()
        summary = translate(SCHEMA, TensorCheckpointStore(_checkpoint()), TensorParameterStore(params), 2)

        self.assertEqual(summary.entries, 6)
        self.assertEqual(sorted(summary.parameters), sorted(params))
        self.assertEqual(summary.elements, sum(t.numel() for t in params.values()))
        self.assertEqual(params["layers.1.qkv"].tolist(), [[11.0] * 3, [11.0] * 3, [12.0] * 3])
        self.assertEqual(params["layers.1.bias"].tolist(), [1.0, 1.0, 2.0])
        self.assertEqual(params["head.w"].tolist(), [[0.0, 2.0, 4.0], [1.0, 3.0, 5.0]])
        self.assertEqual(params["head.b"].tolist(), [7.0, 8.0])

    def test_assignment_is_in_place(self) -> None:
        params = _parameters()
        before = params["head.w"]
        translate(SCHEMA, TensorCheckpointStore(_checkpoint()), TensorParameterStore(params), 2)
        self.assertIs(params["head.w"], before)
        self.assertEqual(before.tolist(), [[0.0, 2.0, 4.0], [1.0, 3.0, 5.0]])

    def test_assignment_preserves_dtype(self) -> None:
        params = _parameters()
        params["head.b"] = torch.zeros(2, dtype=torch.float64)
        translate(SCHEMA, TensorCheckpointStore(_checkpoint()), TensorParameterStore(params), 2)
        self.assertEqual(params["head.b"].dtype, torch.float64)
        self.assertEqual(params["head.b"].tolist(), [7.0, 8.0])

    def test_prefix(self) -> None:
        params = _parameters()
        summary = translate(
            SCHEMA,
            TensorCheckpointStore(_checkpoint("bert")),
            TensorParameterStore(params),
            2,
            prefix="bert",
        )
        self.assertEqual(summary.prefix, "bert")
        self.assertEqual(params["head.b"].tolist(), [7.0, 8.0])

    def test_idempotent(self) -> None:
        once = _parameters()
        translate(SCHEMA, TensorCheckpointStore(_checkpoint()), TensorParameterStore(once), 2)
        twice = _parameters()
        store = TensorParameterStore(twice)
        translate(SCHEMA, TensorCheckpointStore(_checkpoint()), store, 2)
        translate(SCHEMA, TensorCheckpointStore(_checkpoint()), store, 2)
        for name in once:
            self.assertTrue(torch.equal(once[name], twice[name]), name)

    def test_missing_source_fails_fast(self) -> None:
        checkpoint = _checkpoint()
        del checkpoint["layer_0/k"]
        params = _parameters()

        with self.assertRaises(MissingSourceTensor) as ctx:
            translate(SCHEMA, TensorCheckpointStore(checkpoint), TensorParameterStore(params), 2)

        err = ctx.exception
        self.assertEqual(err.name, "layer_0/k")
        assert err.report is not None
        self.assertEqual(err.report.kind, ErrorKind.MISSING_SOURCE_TENSOR)
        self.assertEqual(err.report.entry_index, 0)
        self.assertEqual(err.report.target_name, "layers.0.qkv")
        self.assertEqual(err.report.template, "layers.#.qkv")
        for name, tensor in params.items():
            self.assertEqual(tensor.abs().sum().item(), 0.0, name)

    def test_later_entries_untouched_after_failure(self) -> None:
        checkpoint = _checkpoint()
        del checkpoint["layer_1/kb"]
        params = _parameters()

        with self.assertRaises(MissingSourceTensor) as ctx:
            translate(SCHEMA, TensorCheckpointStore(checkpoint), TensorParameterStore(params), 2)

        assert ctx.exception.report is not None
        self.assertEqual(ctx.exception.report.entry_index, 3)
        # entries 0-2 ran, 3 failed, 4-5 never did
        self.assertNotEqual(params["layers.1.qkv"].abs().sum().item(), 0.0)
        self.assertEqual(params["layers.1.bias"].abs().sum().item(), 0.0)
        self.assertEqual(params["head.w"].abs().sum().item(), 0.0)
        self.assertEqual(params["head.b"].abs().sum().item(), 0.0)

    def test_shape_mismatch_against_target(self) -> None:
        params = _parameters()
        params["head.w"] = torch.zeros(3, 2)

        with self.assertRaises(ShapeMismatch) as ctx:
            translate(SCHEMA, TensorCheckpointStore(_checkpoint()), TensorParameterStore(params), 2)

        report = ctx.exception.describe()
        self.assertEqual(report.target_name, "head.w")
        self.assertEqual(report.expected, (3, 2))
        self.assertEqual(report.actual, (2, 3))
        self.assertEqual(report.entry_index, 4)
        self.assertEqual(params["head.w"].abs().sum().item(), 0.0)

    def test_shape_mismatch_between_inputs(self) -> None:
        checkpoint = _checkpoint()
        checkpoint["layer_0/k"] = torch.zeros(1, 4)

        with self.assertRaises(ShapeMismatch) as ctx:
            translate(SCHEMA, TensorCheckpointStore(checkpoint), TensorParameterStore(_parameters()), 2)
        assert ctx.exception.report is not None
        self.assertEqual(ctx.exception.report.sources, ("layer_0/q", "layer_0/k"))

    def test_missing_target_reports_entry(self) -> None:
        params = _parameters()

        class ListedButAbsent(TensorParameterStore):
            def lookup(self, name: str) -> ParameterHandle:
                if name == "head.b":
                    raise MissingTargetParameter(name)
                return super().lookup(name)

        with self.assertRaises(MissingTargetParameter) as ctx:
            translate(SCHEMA, TensorCheckpointStore(_checkpoint()), ListedButAbsent(params), 2)
        self.assertEqual(ctx.exception.name, "head.b")
        assert ctx.exception.report is not None
        self.assertEqual(ctx.exception.report.entry_index, 5)

    def test_coverage_runs_before_any_write(self) -> None:
        params = _parameters()
        params["extra.w"] = torch.zeros(1)

        with self.assertRaises(SchemaError):
            translate(SCHEMA, TensorCheckpointStore(_checkpoint()), TensorParameterStore(params), 2)
        self.assertEqual(params["layers.0.qkv"].abs().sum().item(), 0.0)

    def test_partial_schema_never_succeeds(self) -> None:
        schema = MappingSchema([MappingEntry.of("a", "src/a", Op.IDENTITY)])
        params = {"a": torch.zeros(2), "b": torch.zeros(2)}
        checkpoint = {"src/a": torch.ones(2)}

        with self.assertRaises(SchemaError) as ctx:
            translate(schema, TensorCheckpointStore(checkpoint), TensorParameterStore(params), 0)
        self.assertIn("'b'", str(ctx.exception))
        self.assertEqual(params["a"].tolist(), [0.0, 0.0])
        self.assertEqual(params["b"].tolist(), [0.0, 0.0])

    def test_non_tensor_source_reports_entry(self) -> None:
        checkpoint: dict[str, object] = dict(_checkpoint())
        checkpoint["head/bias"] = [7.0, 8.0]

        with self.assertRaises(InvalidSourceTensor) as ctx:
            translate(
                SCHEMA,
                TensorCheckpointStore(checkpoint),  # type: ignore[arg-type]
                TensorParameterStore(_parameters()),
                2,
            )
        report = ctx.exception.describe()
        self.assertEqual(report.kind, ErrorKind.INVALID_SOURCE_TENSOR)
        self.assertEqual(report.entry_index, 5)
        self.assertEqual(report.target_name, "head.b")

    def test_invalid_layer_count(self) -> None:
        with self.assertRaises(InvalidLayerCount):
            translate(
                SCHEMA,
                TensorCheckpointStore(_checkpoint()),
                TensorParameterStore(_parameters()),
                -1,
            )


if __name__ == "__main__":
    unittest.main()

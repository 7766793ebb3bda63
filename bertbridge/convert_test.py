"""
convert_test provides end-to-end tests for the conversion pipeline.
"""
from __future__ import annotations

import io
import tempfile
import unittest
from pathlib import Path

import numpy as np
import torch
from rich.console import Console
from safetensors.torch import load_file

from bertbridge.config.manifest import ConvertManifest
from bertbridge.console import logger
from bertbridge.console.logger import BERTBRIDGE_THEME
from bertbridge.convert import Converter, load_schema
from bertbridge.translate import BERT_SCHEMA, MissingSourceTensor, SchemaError
from bertbridge.translate.bert_test import tf_bert_checkpoint, tiny_config


def _write_npz(path: Path, state: dict[str, torch.Tensor]) -> None:
    np.savez(path, **{k: v.numpy() for k, v in state.items()})


class ConverterTest(unittest.TestCase):
    """
    ConverterTest runs manifests through Converter against temporary files.
    """
    def setUp(self) -> None:
        self._console = logger.console
        logger.console = Console(file=io.StringIO(), theme=BERTBRIDGE_THEME)
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        self.config = tiny_config(2)
        self.checkpoint = tf_bert_checkpoint(self.config)

    def tearDown(self) -> None:
        logger.console = self._console
        self.tmp.cleanup()

    def manifest(self, **overrides: object) -> ConvertManifest:
        values: dict[str, object] = {
            "checkpoint": self.root / "bert.npz",
            "output": self.root / "out" / "model.safetensors",
            "model": self.config.model_dump(),
            "num_labels": 3,
        }
        values.update(overrides)
        return ConvertManifest.model_validate(values)

    def test_run_writes_translated_state(self) -> None:
        _write_npz(self.root / "bert.npz", self.checkpoint)

        summary = Converter(self.manifest()).run()

        self.assertEqual(summary.layer_count, 2)
        saved = load_file(str(self.root / "out" / "model.safetensors"))
        self.assertIn("classifier.weight", saved)
        self.assertEqual(tuple(saved["classifier.weight"].shape), (3, self.config.hidden_size))
        self.assertTrue(
            torch.equal(
                saved["bert.encoder.layers.0.linear2.weight"],
                self.checkpoint["bert/encoder/layer_0/output/dense/kernel"].t(),
            )
        )

    def test_warns_about_unused_checkpoint_tensors(self) -> None:
        self.checkpoint["cls/predictions/output_bias"] = torch.zeros(self.config.vocab_size)
        self.checkpoint["global_step"] = torch.zeros(1)
        _write_npz(self.root / "bert.npz", self.checkpoint)

        Converter(self.manifest()).build()

        out = logger.console.file.getvalue()
        self.assertIn("2 checkpoint tensors not used by the schema", out)

    def test_no_warning_when_every_tensor_is_used(self) -> None:
        _write_npz(self.root / "bert.npz", self.checkpoint)

        Converter(self.manifest()).build()

        self.assertNotIn("not used", logger.console.file.getvalue())

    def test_missing_tensor_aborts_before_writing(self) -> None:
        del self.checkpoint["bert/pooler/dense/bias"]
        _write_npz(self.root / "bert.npz", self.checkpoint)

        with self.assertRaises(MissingSourceTensor):
            Converter(self.manifest()).run()
        self.assertFalse((self.root / "out" / "model.safetensors").exists())

    def test_custom_prefix(self) -> None:
        state = tf_bert_checkpoint(self.config, prefix="encoder_model")
        _write_npz(self.root / "bert.npz", state)

        model, summary = Converter(self.manifest(prefix="encoder_model")).build()
        self.assertEqual(summary.prefix, "encoder_model")
        self.assertTrue(
            torch.equal(
                model.bert.embeddings.layer_norm.weight.detach(),
                state["encoder_model/embeddings/LayerNorm/gamma"],
            )
        )

    def test_schema_file_that_misses_parameters(self) -> None:
        _write_npz(self.root / "bert.npz", self.checkpoint)
        schema = self.root / "partial.yml"
        schema.write_text(
            "\n".join(
                [
                    "name: partial",
                    "entries:",
                    "  - target: pooler.weight",
                    "    sources: pooler/dense/kernel",
                    "    op: transpose",
                ]
            ),
            encoding="utf-8",
        )
        with self.assertRaises(SchemaError):
            Converter(self.manifest(schema=schema)).run()


class LoadSchemaTest(unittest.TestCase):
    """Tests for load_schema."""

    def test_default(self) -> None:
        self.assertIs(load_schema(None), BERT_SCHEMA)


if __name__ == "__main__":
    unittest.main()

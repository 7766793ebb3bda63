"""
convert runs a full checkpoint conversion described by a manifest.
"""
from __future__ import annotations

from pathlib import Path

from safetensors.torch import save_file

from bertbridge.config.manifest import ConvertManifest
from bertbridge.console import logger
from bertbridge.loader import CheckpointLoader
from bertbridge.model import BertClassifier
from bertbridge.translate import (
    BERT_SCHEMA,
    MappingSchema,
    ModuleParameterStore,
    TensorCheckpointStore,
    TranslationSummary,
    expand,
    translate,
)


def load_schema(path: Path | None) -> MappingSchema:
    """Return the schema at `path`, or the built-in BERT schema."""
    if path is None:
        return BERT_SCHEMA
    return MappingSchema.from_path(path)


class Converter:
    """Loads a checkpoint into a freshly built BertClassifier and saves it.

    Only the pretrained encoder (`model.bert`) is translated; the
    classification head keeps its initialization.
    """

    def __init__(self, manifest: ConvertManifest, loader: CheckpointLoader | None = None) -> None:
        self.manifest = manifest
        self.loader = loader or CheckpointLoader()

    def build(self) -> tuple[BertClassifier, TranslationSummary]:
        """Build the model and translate the checkpoint into it."""
        config = self.manifest.target_config()
        schema = load_schema(self.manifest.schema_path)

        logger.step(1, 3, "Loading checkpoint")
        logger.path(str(self.manifest.checkpoint), "checkpoint")
        state_dict = self.loader.load(self.manifest.checkpoint)
        logger.info(f"{len(state_dict)} tensors in checkpoint")

        logger.step(2, 3, "Building model")
        model = BertClassifier(config)
        logger.key_value(
            {
                "layers": config.num_layers,
                "hidden": config.hidden_size,
                "heads": config.num_heads,
                "labels": config.num_labels,
            }
        )

        logger.step(3, 3, f"Translating with schema {schema.name!r} v{schema.version}")
        summary = translate(
            schema,
            TensorCheckpointStore(state_dict),
            ModuleParameterStore(model.bert),
            config.num_layers,
            prefix=self.manifest.prefix,
        )
        logger.key_value(summary.as_dict(), title="Translation")
        entries = expand(schema, config.num_layers, prefix=self.manifest.prefix)
        used = {name for entry in entries for name in entry.sources}
        unused = len(set(state_dict) - used)
        if unused:
            logger.warning(f"{unused} checkpoint tensors not used by the schema")
        return model, summary

    def run(self) -> TranslationSummary:
        """Convert and write the model's state_dict as safetensors."""
        model, summary = self.build()
        output = self.manifest.output
        output.parent.mkdir(parents=True, exist_ok=True)
        state = {k: v.detach().contiguous() for k, v in model.state_dict().items()}
        save_file(state, str(output))
        logger.success(f"Wrote {len(state)} tensors")
        logger.path(str(output), "output")
        return summary

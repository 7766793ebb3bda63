"""
model provides the target BERT modules checkpoints are translated into.
"""
from __future__ import annotations

from bertbridge.model.bert import BertClassifier, BertEmbeddings, BertEncoder

__all__ = ["BertClassifier", "BertEmbeddings", "BertEncoder"]

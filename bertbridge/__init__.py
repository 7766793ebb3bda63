"""bertbridge: load TensorFlow BERT checkpoints into torch encoders.

A released BERT checkpoint and a torch model built from nn.TransformerEncoder
name and lay out the same weights differently. bertbridge reconciles the two
with a declarative mapping schema and a translator that expands it over the
model's layers, reshapes and fuses tensors, and assigns them with shape
checks.

Core workflows:
- Convert: manifest → checkpoint → BertClassifier → .safetensors
- Expand: review the concrete name mapping a schema produces
"""

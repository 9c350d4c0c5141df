"""
Tokenization subpackage -- configured tokenizers from HuggingFace files.
"""

from textembed.tokenization.loader import TokenizerFiles, load_tokenizer

"""
Hub subpackage -- model file retrieval through the HuggingFace Hub cache.
"""

from textembed.hub.repository import ModelRepository, retrieve_model

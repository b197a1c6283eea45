"""
Serialization of the live rendering into persisted HTML.
"""

from clonup_editor.serialize.entities import decode_entities
from clonup_editor.serialize.pipeline import SerializationPipeline
from clonup_editor.serialize.urls import ManagedDomainSet

__all__ = [
    "ManagedDomainSet",
    "SerializationPipeline",
    "decode_entities",
]

"""
Core data models for ParserGrok.

Defines the chunk structure produced by every CodeParser implementation.

All models are designed for:
- Immutability (frozen dataclasses)
- Serialization (JSON-compatible via to_dict/from_dict)
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, Any


@dataclass(frozen=True)
class TextChunk:
    """
    Immutable representation of a parsed code fragment with metadata.

    Attributes:
        content: The raw source text for this chunk
        language: Language identifier (e.g., "python")
        entity_type: Entity kind (e.g., "class", "function", "method")
        entity_name: Qualified entity name (includes nesting)
        source_file: Path of the source file that produced this chunk
        start_line: Starting line number (1-based, inclusive)
        end_line: Ending line number (1-based, inclusive)
        start_byte: Starting byte offset (0-based, inclusive)
        end_byte: Ending byte offset (0-based, exclusive)
        attributes: Additional metadata such as signatures or parents
    """
    content: str
    language: str
    entity_type: str
    entity_name: str
    source_file: str
    start_line: int
    end_line: int
    start_byte: int = 0
    end_byte: int = 0
    attributes: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        """
        Validate chunk data after initialization.

        Raises:
            ValueError: If any validation constraint is violated
        """
        if not self.language:
            raise ValueError("TextChunk language cannot be empty")
        if not self.entity_type:
            raise ValueError("TextChunk entity_type cannot be empty")
        if not self.source_file:
            raise ValueError("TextChunk source_file cannot be empty")
        if self.start_line < 1 or self.end_line < self.start_line:
            raise ValueError(
                f"Line numbers must be positive and end_line >= start_line, "
                f"got {self.start_line}-{self.end_line}"
            )
        if self.start_byte < 0 or self.end_byte < self.start_byte:
            raise ValueError(
                f"Byte offsets must be non-negative and end_byte >= start_byte, "
                f"got {self.start_byte}-{self.end_byte}"
            )

    @property
    def line_count(self) -> int:
        """Number of lines covered by this chunk (inclusive)."""
        return self.end_line - self.start_line + 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert TextChunk to a dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TextChunk':
        """Create TextChunk from a dictionary produced by to_dict()."""
        return cls(**data)

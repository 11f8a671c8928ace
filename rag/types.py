from typing import Optional
from dataclasses import dataclass


@dataclass(frozen=True)
class Chunk:
   """One embedded slice of a crawled page, ordered by chunk_index."""
   vector_id: str
   chunk_index: int
   text: Optional[str]


@dataclass(frozen=True)
class SectionBlock:
   """Contiguous span of page text between two [SECTION n] markers."""
   title: str
   body: str
   number: Optional[int] = None

"""Document parsers: markdown text in, typed records out."""

from specdash.parsers.blocks import Block, BlockKind, Document, parse_blocks, parse_document
from specdash.parsers.data_model import parse_data_model_content
from specdash.parsers.plan import parse_plan_content
from specdash.parsers.research import parse_research_content
from specdash.parsers.spec import parse_spec_content
from specdash.parsers.tasks import parse_tasks_content

__all__ = [
    "Block",
    "BlockKind",
    "Document",
    "parse_blocks",
    "parse_document",
    "parse_data_model_content",
    "parse_plan_content",
    "parse_research_content",
    "parse_spec_content",
    "parse_tasks_content",
]

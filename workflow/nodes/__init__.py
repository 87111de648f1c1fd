# Workflow nodes
from .scan_inputs import scan_inputs_node
from .extract_text import extract_text_node
from .parse_items import parse_items_node
from .match_catalog import match_catalog_node
from .generate_report import generate_report_node
from .batch_summary import batch_summary_node

__all__ = [
    "scan_inputs_node",
    "extract_text_node",
    "parse_items_node",
    "match_catalog_node",
    "generate_report_node",
    "batch_summary_node",
]

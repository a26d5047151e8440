"""
Data models for metric descriptors and samples.
"""

from .metric import MetricDescriptor, MetricKind, Sample
from .registry import DescriptorTable, build_descriptor_table

__all__ = [
    "MetricDescriptor",
    "MetricKind",
    "Sample",
    "DescriptorTable",
    "build_descriptor_table",
]

"""Core utility functions."""

from core.utils.json_serializers import json_serializer
from core.utils.worker_id import generate_host_name, generate_worker_id

__all__ = ["json_serializer", "generate_host_name", "generate_worker_id"]

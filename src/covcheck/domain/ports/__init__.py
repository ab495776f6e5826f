"""Ports: interfaces implemented by infrastructure adapters."""

from covcheck.domain.ports.event_source import EventSourceProtocol
from covcheck.domain.ports.file_discovery import FileDiscoveryPort
from covcheck.domain.ports.static_analyzer import StaticAnalyzerPort

__all__ = [
    "EventSourceProtocol",
    "FileDiscoveryPort",
    "StaticAnalyzerPort",
]

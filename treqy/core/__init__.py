"""Core domain layer - entities, interfaces, services and exceptions."""

from treqy.core import entities, exceptions, interfaces

__all__ = ["entities", "interfaces", "exceptions"]

"""Code templates for composite operations.

This package provides:
- RenderedModule: imports plus body text produced by a template
- render_context_provider: React context, provider component, and consumer hook
- render_zustand_store: zustand store hook with optional persist middleware
- authentication: login state, handlers, form, and logout button snippets
"""

from jsx_change_engine.templates.base import RenderedModule
from jsx_change_engine.templates.context_provider import render_context_provider
from jsx_change_engine.templates.zustand_store import render_zustand_store

__all__ = ["RenderedModule", "render_context_provider", "render_zustand_store"]

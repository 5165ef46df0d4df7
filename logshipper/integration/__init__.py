"""Adapters between logging frameworks and the shipper."""

from logshipper.integration.handler import BubbleFilter, LogShippingHandler

__all__ = ["LogShippingHandler", "BubbleFilter"]

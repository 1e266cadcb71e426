"""StyleChat: persona-constrained fashion assistant with durable conversation history."""

__version__ = "0.1.0"

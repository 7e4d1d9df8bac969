"""ProdMill: spec-driven automation engine for dispatching backlog work to a coding agent."""

__version__ = "0.1.0"

"""Core configuration, logging, exceptions and DTOs."""

"""Shared configuration, constants and logging."""

"""Shared configuration, logging, and CLI helpers."""

"""Durable queue of pending CDN copy/delete tasks."""

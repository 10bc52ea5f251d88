"""Relays status page maintenance and incident reports to Misskey."""

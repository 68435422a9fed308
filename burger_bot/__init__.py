"""Burger Bot: WhatsApp order-taking agent for a single restaurant."""

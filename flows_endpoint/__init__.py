"""Placeholder WhatsApp Flows data_exchange endpoint."""

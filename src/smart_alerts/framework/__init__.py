"""
smart-alerts framework - delivery channels and logging.

Subpackages:
    alerts   AlertChannel protocol, BaseChannel and the Telegram, webhook
             and console channels
    logging  structlog configuration and context propagation
"""

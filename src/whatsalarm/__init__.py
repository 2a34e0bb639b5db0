"""whatsalarm: keyword alarm for WhatsApp Web.

Watches a logged-in WhatsApp Web page for new incoming messages and starts a
looping local alarm when one of the configured (Arabic-aware) keywords shows up.
"""

__version__ = "1.0.0"

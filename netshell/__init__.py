"""Network emulation building blocks: addresses, sockets, polling, DNS proxying and AQM packet queues."""

__version__ = "0.1.0"
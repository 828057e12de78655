"""Clock-cycle model of an RMII Ethernet receiver and transmitter for UDP over IPv4."""

__version__ = "0.1.0"
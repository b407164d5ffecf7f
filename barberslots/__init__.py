"""
barberslots - appointment availability and booking for a barbershop.
"""

__version__ = "0.1.0"

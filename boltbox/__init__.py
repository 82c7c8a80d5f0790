"""Boltbox.

Provisioning and control of lnd nodes for local bootstrap and test networks.
"""

__version__ = "0.1.0"

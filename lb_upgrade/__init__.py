"""
Azure Load Balancer Upgrade

Migrates a Basic public load balancer to a new Standard load balancer while
keeping the public IP addresses of its frontends.
"""

__version__ = "1.0.0"

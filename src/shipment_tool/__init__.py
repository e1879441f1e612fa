"""
Shipment Tool Package

Invoice pricing and tracking timeline computation for a logistics back-office.
Derives cascading-percentage invoice breakdowns from a declared value and groups
free-form tracking events into display milestones.
"""

__version__ = "1.0.0"

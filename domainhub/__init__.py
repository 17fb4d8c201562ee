"""DomainHub: domain purchase, provisioning and teardown workflows."""

__version__ = "0.1.0"

"""adsdash: Google Ads performance reports, dashboards and product-title insights."""

__version__ = "0.1.0"

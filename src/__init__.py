"""
Site Audit Traffic Engine

Estimates a website's monthly traffic without real analytics:
1. Fetches the homepage and extracts page signals
2. Classifies business type and size
3. Routes mega-sites to a fixed high-traffic model
4. Synthesizes a deterministic estimate with trend and geography
5. Refines branded traffic from Keywords Everywhere and ValueSERP
"""

__version__ = "0.1.0"

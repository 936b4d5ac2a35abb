"""
Command-line interface for the PROV OAI-PMH harvester
"""

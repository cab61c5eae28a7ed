"""Core auction, ledger, configuration and deployment logic"""

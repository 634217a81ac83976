"""Core domain package for feedlens.

Core contains rule matching, change scheduling and the menu interaction
protocol without any knowledge of a concrete host document, keeping the
business logic portable.
"""

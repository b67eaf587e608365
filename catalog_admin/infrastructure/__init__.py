"""Infrastructure layer.

Settings, database lifecycle, logging setup and the asset host client.
"""

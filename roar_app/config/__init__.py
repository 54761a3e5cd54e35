"""
Configuration module.

Default parameters, YAML config loading with layered precedence, and
validation of the deployer and execution sections.
"""

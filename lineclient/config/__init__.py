"""
A simple configuration helper built on top of ConfigObj. Configuration files are validated against
a schema shipped beside this module, which also supplies the defaults for missing values.
"""

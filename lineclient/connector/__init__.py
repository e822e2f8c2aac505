"""
A connector reaches out to an endpoint and, once connected, provides the conduit used to talk to it.
"""

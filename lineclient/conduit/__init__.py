"""
A conduit is a bidirectional byte channel to a peer: a file-like output endpoint for writing,
a file-like input endpoint for reading, and a way to query and end the underlying session.
"""

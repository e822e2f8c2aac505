"""

Line client

- Conduit: abstraction of a bi-directional channel over a connected socket. Combines 2 streams
  for reading and writing, and reports whether the peer is still there.
- Connector: resolves an endpoint (host name or IPv4 address and port), opens a conduit to it
  and closes it again. Fires connected/disconnected events.
- Line protocol: text messages, each written as a single line terminated by CR LF.
- LineConnector: the connector facade used by applications. Every operation returns whether it
  succeeded, and the description of the last failure is kept for display.
- Settings: the last endpoint and the autoconnect flag, persisted between runs.
- Client: the interactive console that ties these together.

"""

"""Marketplace bounded context — Order, Return and Refund lifecycles.

Models a merchant's view of a sale on a third-party marketplace: the remote
system owns every status, and this context decides which transitions are
legal, builds the transition requests, and converts line items from one
stage to the next.
"""

from protean.domain import Domain

marketplace = Domain(name="marketplace")

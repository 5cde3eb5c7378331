"""Business rules of the back office that do not depend on storage or HTTP.

Contract statuses and association roles, invoice units, and role names live
here so services, repositories, schemas and migrations agree on them.
"""

"""avsforge: compile service designs into ordered, recoverable deployments.

An operator describes a distributed service as a graph of typed nodes
(governance, attestation, compute, messaging...). avsforge validates and
normalizes that design, compiles it into a manifest of on-chain and off-chain
artifacts, deploys them in dependency order, writes contract addresses back
into the service config, and versions the manifest for rollback.

Core workflows:
- Compile: design → IR → manifest (`avsforge generate`)
- Review: resolved order plus warnings (`avsforge preview`)
- Deploy: sequential, failure-isolated execution (`avsforge deploy`)
- Recover: manifest snapshots and rollback (`avsforge snapshot`, `rollback`)
"""

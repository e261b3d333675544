"""tokenscope: read-only HTTP API over NFT collections, tokens and attributes.

The package exposes collection listings, token pages, attribute filters and
attribute distributions backed by a Firestore document store, with live
on-chain fallbacks for tokens that have not been indexed yet.
"""

__version__ = "0.1.0"

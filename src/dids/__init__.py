"""
┌──────────────────────────────┐
│        DID utilities         │
│                              │
│ - parse / normalize DIDs     │
│ - did:web, did:pkh, CAIP-10  │
│ - DID hash (keccak256)       │
│ - request field validation   │
└──────────────┬───────────────┘
               │
┌──────────────▼───────────────┐
│   did:web document resolver  │
│                              │
│ - build did.json URL         │
│ - fetch + shape checks       │
└──────────────┬───────────────┘
               │
┌──────────────▼───────────────┐
│  Proof & Crypto Engine       │
│                              │
│ - JCS canonical bytes        │
│ - keccak256 digests          │
└──────────────────────────────┘
"""

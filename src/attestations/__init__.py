"""
┌──────────────────────────────┐
│     POST /verify-and-attest  │
│  (controllers – validation)  │
└──────────────┬───────────────┘
               │
┌──────────────▼───────────────┐
│          DID Router          │
│                              │
│ - did:web  → web verifier    │
│ - did:pkh  → contract verif. │
│ - anything else → 400        │
└──────────────┬───────────────┘
               │
┌──────────────▼───────────────┐
│  Attestation Existence Check │
│                              │
│ - resolver read per schema   │
│ - all present → fast path    │
└──────────────┬───────────────┘
               │
┌──────────────▼───────────────┐
│          Verifiers           │
│                              │
│ - DNS TXT / did.json         │
│ - owner() admin() getOwner() │
│ - EIP-1967 admin slot        │
│ - minting wallet / transfer  │
└──────────────┬───────────────┘
               │
┌──────────────▼───────────────┐
│      Attestation Writer      │
│                              │
│ - one tx per missing schema  │
│ - local key | managed wallet │
│ - partial failure → warnings │
└──────────────────────────────┘
"""

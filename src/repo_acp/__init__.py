"""repo-acp: attribute-based access control for hierarchical resource stores.

Decisions are made by walking the resource hierarchy to the nearest assigned
policy and evaluating it with a Policy Decision Point (PDP).

Layout:
    context/    - EvaluationRequest and its builder
    store/      - Resource store protocol and in-memory implementation
    prp/        - Policy retrieval (hierarchical policy finder, policy cache)
    pips/       - Attribute and resource finders consulted by the PDP
    pdp/        - Decisions, policy documents, reference engine, PDP factory
    pep/        - Authorization delegate (entry point)
    bootstrap/  - Default policy loading
"""

__version__ = "0.3.0"

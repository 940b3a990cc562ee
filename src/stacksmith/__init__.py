"""Construct tree and deferred value engine for infrastructure templates.

The `stacksmith` package turns a tree of high-level declarations (load
balancers, listeners, target groups, security groups) into a single,
fully resolved resource template.

Key features:
- tokens standing for values known only at synthesis time;
- a construct tree with path identity, accumulated validation and
  one-shot synthesis;
- security group negotiation between connectable resources;
- application load balancing constructs, constructed or imported.

Declarations reference each other's attributes through tokens, so
constructs can be declared in any order and are resolved exactly once
when the tree is synthesized.
"""

"""Core facade logic.

This package holds everything between the HTTP edge and the Arena data
layer, independent of Flask:

Architecture:
    - routing / dispatcher: URL templates, parameter binding, error mapping
    - serialization / contracts: wire shapes in XML and JSON
    - visibility / rbac: field-level security and permission checks
    - mappers: Arena entities -> wire contracts
    - arena: data-layer entities and stores
"""

"""gql-cachegen: cache-key and invalidation definitions from GraphQL schemas."""

__version__ = "0.1.0"

"""
Infrastructure Layer - Technical implementations of domain ports.

This layer contains:
- persistence/: Conversation Store implementations (in-memory reference store)
- bedrock/: Agent Gateway backed by Amazon Bedrock Agents (boto3)
"""

"""AWS catalog adapters (boto3)."""

"""
DynamoDB access for the loader.
"""
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from wordrank.common.config import AWS_REGION
from wordrank.common.errors import StoreRejectedError, StoreTransportError

logger = logging.getLogger(__name__)

# Error codes that describe the request rather than the store's state
NON_RETRYABLE_CODES = (
    'ValidationException',
    'ResourceNotFoundException',
    'SerializationException',
)


class DynamoStore:
    """Thin wrapper around the DynamoDB client's batch_write_item."""

    def __init__(self, client=None, region_name=AWS_REGION):
        # Created up front: boto3 clients are thread safe, client creation is not
        if client is None:
            client = boto3.client('dynamodb', region_name=region_name)
            logger.info(f"DynamoDB client initialized with region: {region_name}")
        self.client = client

    def batch_write(self, table_name, requests):
        """
        Submit up to one batch of write requests to a table.

        Returns:
            The requests DynamoDB reported as unprocessed (empty when all
            were written).

        Raises:
            StoreRejectedError: if DynamoDB refused the request as invalid.
            StoreTransportError: if the call failed for any other reason.
        """
        try:
            response = self.client.batch_write_item(RequestItems={table_name: requests})
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code', 'Unknown')
            if code in NON_RETRYABLE_CODES:
                raise StoreRejectedError(code, str(e)) from e
            raise StoreTransportError(f"{code}: {e}") from e
        except BotoCoreError as e:
            raise StoreTransportError(str(e)) from e

        return response.get('UnprocessedItems', {}).get(table_name, [])

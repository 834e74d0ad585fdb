"""
Shared setup for tests that talk to a mocked DynamoDB.
"""
import os

import boto3

AWS_REGION = 'us-east-1'

# moto never checks these, but botocore needs something to sign requests with
os.environ.setdefault('AWS_ACCESS_KEY_ID', 'testing')
os.environ.setdefault('AWS_SECRET_ACCESS_KEY', 'testing')
os.environ.setdefault('AWS_DEFAULT_REGION', AWS_REGION)


def create_word_url_rank_table(client, table_name='WordUrlRank'):
    client.create_table(
        TableName=table_name,
        KeySchema=[
            {'AttributeName': 'Word', 'KeyType': 'HASH'},
            {'AttributeName': 'Url', 'KeyType': 'RANGE'},
        ],
        AttributeDefinitions=[
            {'AttributeName': 'Word', 'AttributeType': 'S'},
            {'AttributeName': 'Url', 'AttributeType': 'S'},
        ],
        ProvisionedThroughput={'ReadCapacityUnits': 5, 'WriteCapacityUnits': 5}
    )


def create_word_sites_table(client, table_name='WordSites'):
    client.create_table(
        TableName=table_name,
        KeySchema=[{'AttributeName': 'Word', 'KeyType': 'HASH'}],
        AttributeDefinitions=[{'AttributeName': 'Word', 'AttributeType': 'S'}],
        ProvisionedThroughput={'ReadCapacityUnits': 5, 'WriteCapacityUnits': 5}
    )


def scan_all(client, table_name):
    return client.scan(TableName=table_name)['Items']


def dynamodb_client():
    return boto3.client('dynamodb', region_name=AWS_REGION)

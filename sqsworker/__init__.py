"""
sqsworker polls batches of messages from an SQS queue, hands every message to an item handler,
the whole batch to a list handler and removes the successfully handled messages from the queue.
"""

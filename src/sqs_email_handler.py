"""
AWS Lambda handler for turning SES email notifications from SQS into Atom feeds.

Thin orchestration layer that delegates to FeedProcessor.
Policy: failed records are reported as batch item failures so SQS
redelivers them; committed feed updates are acknowledged.
"""

import logging
import os
from typing import Dict, Any

from config import FeedConfig
from domain.feed_processor import FeedProcessor

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())

# Add console handler for local testing (AWS Lambda provides handlers automatically)
if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)
    formatter = logging.Formatter('%(levelname)s - %(name)s - %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

# Initialize processor once at module level (reused across invocations)
feed_processor = FeedProcessor(FeedConfig.from_env())


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Process SES email notifications from SQS.

    Args:
        event: Lambda event with SQS records
        context: Lambda context

    Returns:
        Dict with batchItemFailures listing records that were not processed
    """
    logger.info("=" * 70)
    logger.info("SES Email-to-Feed Processor - Started")
    logger.info("=" * 70)

    records = event.get('Records', [])
    logger.info(f"Processing batch of {len(records)} message(s)")

    results = []
    failures = []
    for record in records:
        result = feed_processor.process_ses_record(record)
        results.append(result)

        # Log outcome
        if result.success:
            logger.info(f"✓ Updated feed {result.feed_key} from message {result.message_id}")
        else:
            logger.warning(
                f"⚠ Failed message {result.message_id}, leaving it for redelivery: "
                f"{result.error_message}"
            )

        if not result.should_delete_message:
            failures.append({"itemIdentifier": result.message_id})

    # Log summary
    logger.info("=" * 70)
    logger.info(f"Batch processing complete: {len(results)} message(s)")
    logger.info(f"  Success: {len(results) - len(failures)}")
    logger.info(f"  Errors: {len(failures)}")
    logger.info("=" * 70)

    return {"batchItemFailures": failures}

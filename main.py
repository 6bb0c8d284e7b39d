import logging
import os
import sys

import yaml

from sales_etl import PipelineConfig, SalesETL
from sales_etl.exceptions import ETLError
from sales_etl.utils.logging_config import setup_pipeline_logging, log_etl_summary

logger = logging.getLogger(__name__)


def main() -> int:
    """Replicate the source sales table into the target store."""

    log_files = setup_pipeline_logging(log_dir=os.getenv('LOG_DIR', 'logs'))
    logger.info("Starting sales ETL pipeline...")

    try:
        config = None
        config_file = os.getenv('PIPELINE_CONFIG')
        if config_file:
            config = PipelineConfig.load_from_yaml(config_file)

        with SalesETL.from_env_file('.env', config) as etl:
            result = etl.run()
            log_etl_summary(result.to_dict(), log_files)
            print(etl.get_pipeline_summary(result))

    except ETLError as e:
        logger.critical(f"ETL Process failed: {e}", exc_info=True)
        return 1
    except (ValueError, FileNotFoundError, yaml.YAMLError) as e:
        logger.critical(f"Invalid configuration: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

import csv
import logging
from typing import Dict, List

from ..utils.validators import validate_fqdn, validate_ip

logger = logging.getLogger(__name__)


class CSVParser:
    """Reads hosts to declare from a CSV file with FQDN, IP and optional Comment columns."""

    def __init__(self, csv_path: str):
        self.csv_path = csv_path

    def parse(self) -> List[Dict[str, str]]:
        """Parse CSV file and validate records."""
        records = []

        try:
            with open(self.csv_path, "r", newline="") as f:
                reader = csv.DictReader(f)

                if not reader.fieldnames or "FQDN" not in reader.fieldnames or "IP" not in reader.fieldnames:
                    raise ValueError("CSV must contain 'FQDN' and 'IP' columns")

                for row_num, row in enumerate(reader, start=2):
                    fqdn = (row["FQDN"] or "").strip()
                    ip = (row["IP"] or "").strip()
                    comment = (row.get("Comment") or "").strip()

                    if not validate_fqdn(fqdn):
                        logger.warning(
                            f"Invalid FQDN '{fqdn}' at row {row_num}, skipping"
                        )
                        continue

                    if not validate_ip(ip):
                        logger.warning(
                            f"Invalid IP '{ip}' at row {row_num}, skipping"
                        )
                        continue

                    records.append({"fqdn": fqdn, "ip": ip, "comment": comment})

            logger.info(f"Successfully parsed {len(records)} records from CSV")

        except FileNotFoundError:
            raise FileNotFoundError(f"CSV file not found: {self.csv_path}")
        except ValueError:
            raise
        except Exception as e:
            raise ValueError(f"Error parsing CSV: {e}")

        return records

# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

import unittest

from dacite import Config, from_dict

from shared.json_utils import convert_keys
from shared.types import ExpenseTag, FinancialRecord, FinancialRecordType, User, UserRole


class ConvertKeysTest(unittest.TestCase):

    def test_camel_to_snake_is_recursive(self):
        data = {
            "businessType": "bakery",
            "financialGoals": [{"targetAmount": 10, "wateringCount": 2}],
        }

        self.assertEqual(
            convert_keys(data, "camel_to_snake"),
            {
                "business_type": "bakery",
                "financial_goals": [{"target_amount": 10, "watering_count": 2}],
            },
        )

    def test_snake_to_camel(self):
        self.assertEqual(
            convert_keys({"balance_after": 1, "reference_id": None}, "snake_to_camel"),
            {"balanceAfter": 1, "referenceId": None},
        )

    def test_scalars_pass_through(self):
        self.assertEqual(convert_keys("userId", "camel_to_snake"), "userId")

    def test_unknown_mode(self):
        with self.assertRaises(ValueError):
            convert_keys({}, "kebab")

    def test_user_document_loads_into_dataclass(self):
        doc = {
            "uid": "user-1",
            "email": "ana@example.com",
            "name": "Ana",
            "role": "AFFILIATE",
            "businessType": "bakery",
            "credits": 40,
            "financialGoals": [
                {
                    "id": "g1",
                    "name": "Oven",
                    "targetAmount": 5000,
                    "currentAmount": 1250,
                    "progress": 0.25,
                    "isCompleted": False,
                    "wateringCount": 3,
                }
            ],
        }

        user = from_dict(
            data_class=User,
            data=convert_keys(doc, "camel_to_snake"),
            config=Config(cast=[UserRole], check_types=False),
        )

        self.assertEqual(user.role, UserRole.AFFILIATE)
        self.assertEqual(user.credits, 40)
        self.assertEqual(user.financial_goals[0].watering_count, 3)
        self.assertEqual(user.financial_goals[0].progress, 0.25)

    def test_financial_record_loads_into_dataclass(self):
        record = from_dict(
            data_class=FinancialRecord,
            data=convert_keys(
                {
                    "id": "r1",
                    "userId": "user-1",
                    "type": "EXPENSE",
                    "description": "Flour",
                    "amount": 320.5,
                    "date": None,
                    "tag": "RED",
                },
                "camel_to_snake",
            ),
            config=Config(cast=[FinancialRecordType, ExpenseTag]),
        )

        self.assertEqual(record.type, FinancialRecordType.EXPENSE)
        self.assertEqual(record.tag, ExpenseTag.RED)


if __name__ == "__main__":
    unittest.main()

"""Demo records loaded into an empty database."""
import logging

from core.auth import hash_password
from core.services import (
    DBConnection,
    _insert,
    add_cash_flow,
    add_customer,
    add_expense,
    add_medicine,
    add_prescription,
    add_supplier,
    create_purchase,
    insert_user,
)

logger = logging.getLogger(__name__)

DEMO_USERS = [
    ("admin@pharmacy.com", "admin123", "Admin User", "admin"),
    ("pharmacist@pharmacy.com", "pharma123", "John Pharmacist", "pharmacist"),
    ("cashier@pharmacy.com", "cashier123", "Jane Cashier", "cashier"),
]

DEMO_MEDICINES = [
    {
        "name": "Paracetamol 500mg", "generic_name": "Acetaminophen", "category": "Pain Relief",
        "manufacturer": "PharmaCorp", "unit_price": 2.50, "selling_price": 12.50, "quantity": 150,
        "minimum_stock": 20, "expiry_date": "2025-12-31", "batch_number": "PAR001",
        "description": "Pain and fever relief medication",
    },
    {
        "name": "Amoxicillin 250mg", "generic_name": "Amoxicillin", "category": "Antibiotic",
        "manufacturer": "MediLab", "unit_price": 15.00, "selling_price": 25.00, "quantity": 5,
        "minimum_stock": 20, "expiry_date": "2025-06-15", "batch_number": "AMX002",
        "description": "Broad-spectrum antibiotic",
    },
    {
        "name": "Lisinopril 10mg", "generic_name": "Lisinopril", "category": "Cardiovascular",
        "manufacturer": "HeartCare", "unit_price": 8.00, "selling_price": 18.75, "quantity": 80,
        "minimum_stock": 25, "expiry_date": "2026-03-20", "batch_number": "LIS003",
        "description": "ACE inhibitor for blood pressure",
    },
    {
        "name": "Metformin 500mg", "generic_name": "Metformin", "category": "Diabetes",
        "manufacturer": "GlucoPharm", "unit_price": 6.00, "selling_price": 15.00, "quantity": 120,
        "minimum_stock": 30, "expiry_date": "2026-08-31", "batch_number": "MET004",
        "description": "First-line treatment for type 2 diabetes",
    },
    {
        "name": "Atorvastatin 20mg", "generic_name": "Atorvastatin", "category": "Cardiovascular",
        "manufacturer": "HeartCare", "unit_price": 9.50, "selling_price": 22.50, "quantity": 90,
        "minimum_stock": 25, "expiry_date": "2026-11-30", "batch_number": "ATO005",
        "description": "Statin for cholesterol control",
    },
    {
        "name": "Insulin Glargine", "generic_name": "Insulin Glargine", "category": "Diabetes",
        "manufacturer": "Pharma Distributors Inc", "unit_price": 45.00, "selling_price": 68.00,
        "quantity": 3, "minimum_stock": 10, "expiry_date": "2025-08-31", "batch_number": "INS001",
        "description": "Long-acting insulin",
    },
]

DEMO_CUSTOMERS = [
    {
        "name": "John Doe", "email": "john.doe@email.com", "phone": "+1 (555) 123-4567",
        "address": "123 Main St, Anytown, ST 12345", "date_of_birth": "1985-03-15",
        "gender": "Male", "emergency_contact": "+1 (555) 987-6543", "allergies": "Penicillin",
        "registration_date": "2023-01-15",
    },
    {
        "name": "Jane Smith", "email": "jane.smith@email.com", "phone": "+1 (555) 234-5678",
        "address": "456 Oak Ave, Somewhere, ST 67890", "date_of_birth": "1990-07-22",
        "gender": "Female", "emergency_contact": "+1 (555) 876-5432", "allergies": "None",
        "registration_date": "2023-03-20",
    },
    {
        "name": "Robert Johnson", "email": "robert.j@email.com", "phone": "+1 (555) 345-6789",
        "address": "789 Pine Rd, Elsewhere, ST 13579", "date_of_birth": "1978-11-08",
        "gender": "Male", "emergency_contact": "+1 (555) 765-4321", "allergies": "Aspirin, Shellfish",
        "registration_date": "2022-12-10",
    },
]

DEMO_SUPPLIERS = [
    {
        "name": "MedSupply Corp", "email": "orders@medsupply.com", "phone": "+1 (555) 123-4567",
        "address": "123 Medical St, Healthcare City, HC 12345", "contact_person": "John Medical",
        "payment_terms": "Net 30",
    },
    {
        "name": "Pharma Distributors Inc", "email": "contact@pharmadist.com", "phone": "+1 (555) 234-5678",
        "address": "456 Supply Ave, Distribution City, DC 67890", "contact_person": "Sarah Johnson",
        "payment_terms": "Net 15",
    },
]

DEMO_PRESCRIPTIONS = [
    (
        {
            "prescription_number": "RX001234", "patient_name": "John Doe",
            "doctor_name": "Dr. Sarah Wilson", "date_issued": "2024-01-15",
            "instructions": "Take with food. Monitor blood pressure regularly.",
            "status": "Filled", "total_amount": 45.50, "insurance": "BlueCross",
        },
        [
            {"name": "Lisinopril 10mg", "dosage": "10mg", "frequency": "Once daily", "duration": "30 days", "quantity": 30},
            {"name": "Metformin 500mg", "dosage": "500mg", "frequency": "Twice daily", "duration": "30 days", "quantity": 60},
        ],
    ),
    (
        {
            "prescription_number": "RX001235", "patient_name": "Jane Smith",
            "doctor_name": "Dr. Michael Brown", "date_issued": "2024-01-16",
            "instructions": "Complete full course even if symptoms improve.",
            "status": "Pending", "total_amount": 25.00,
        },
        [
            {"name": "Amoxicillin 250mg", "dosage": "250mg", "frequency": "Three times daily", "duration": "7 days", "quantity": 21},
        ],
    ),
    (
        {
            "prescription_number": "RX001236", "patient_name": "Robert Johnson",
            "doctor_name": "Dr. Emily Davis", "date_issued": "2024-01-17",
            "instructions": "Take in the evening. Follow up in 3 months for cholesterol check.",
            "status": "Partially Filled", "total_amount": 75.25, "insurance": "Aetna",
        },
        [
            {"name": "Atorvastatin 20mg", "dosage": "20mg", "frequency": "Once daily at bedtime", "duration": "90 days", "quantity": 90},
        ],
    ),
]

# Historical sales are stored as recorded, without touching stock.
DEMO_SALES = [
    (
        {
            "sale_number": "SAL001", "customer_name": "John Doe", "customer_phone": "+1 (555) 123-4567",
            "subtotal": 50.00, "tax": 4.00, "discount": 0, "total": 54.00, "payment_method": "Card",
            "sale_date": "2024-01-15", "sale_time": "10:30 AM", "prescription_number": "RX001234",
            "status": "Completed", "cashier": "cashier@pharmacy.com",
        },
        [
            ("Paracetamol 500mg", 2, 12.50),
            ("Amoxicillin 250mg", 1, 25.00),
        ],
    ),
    (
        {
            "sale_number": "SAL002", "customer_name": "Jane Smith", "customer_phone": "+1 (555) 234-5678",
            "subtotal": 56.25, "tax": 4.50, "discount": 5.00, "total": 55.75, "payment_method": "Insurance",
            "sale_date": "2024-01-16", "sale_time": "2:15 PM", "prescription_number": "",
            "status": "Completed", "cashier": "cashier@pharmacy.com",
        },
        [
            ("Lisinopril 10mg", 3, 18.75),
        ],
    ),
]

DEMO_PURCHASES = [
    (
        {
            "purchase_order_id": "PO-2024-001", "supplier_name": "MedSupply Corp",
            "order_date": "2024-01-15", "expected_delivery": "2024-01-20", "status": "Delivered",
        },
        [
            {"medicine_name": "Paracetamol 500mg", "quantity": 500, "unit_price": 2.50, "batch_number": "PAR001", "expiry_date": "2025-12-31"},
            {"medicine_name": "Amoxicillin 250mg", "quantity": 200, "unit_price": 15.00, "batch_number": "AMX001", "expiry_date": "2025-06-30"},
        ],
    ),
    (
        {
            "purchase_order_id": "PO-2024-002", "supplier_name": "Pharma Distributors Inc",
            "order_date": "2024-01-10", "expected_delivery": "2024-01-15", "status": "Pending",
        },
        [
            {"medicine_name": "Insulin Glargine", "quantity": 50, "unit_price": 45.00, "batch_number": "INS001", "expiry_date": "2025-08-31"},
        ],
    ),
]

DEMO_EXPENSES = [
    {"category": "Utilities", "description": "Electricity Bill - January", "amount": 450.00,
     "expense_date": "2024-01-15", "payment_method": "Bank Transfer", "receipt": "ELEC-001", "created_by": "Admin"},
    {"category": "Office Supplies", "description": "Printer Paper and Ink", "amount": 125.50,
     "expense_date": "2024-01-12", "payment_method": "Cash", "receipt": "OFF-002", "created_by": "Admin"},
    {"category": "Maintenance", "description": "AC Servicing", "amount": 200.00,
     "expense_date": "2024-01-10", "payment_method": "Cash", "receipt": "MAINT-001", "created_by": "Admin"},
]

DEMO_CASH_FLOWS = [
    {"flow_type": "Cash In", "amount": 5000.00, "description": "Daily Sales Collection",
     "flow_date": "2024-01-15", "reference": "SALE-2024-001"},
    {"flow_type": "Cash Out", "amount": 450.00, "description": "Electricity Bill Payment",
     "flow_date": "2024-01-15", "reference": "EXP-001"},
    {"flow_type": "Cash In", "amount": 3200.00, "description": "Insurance Claim Settlement",
     "flow_date": "2024-01-14", "reference": "INS-001"},
]


def _is_empty(conn: DBConnection, table: str) -> bool:
    cur = conn.cursor()
    cur.execute(f"SELECT COUNT(*) FROM {table}")
    return int(cur.fetchone()[0]) == 0


def seed_users(conn: DBConnection) -> None:
    if not _is_empty(conn, "users"):
        return
    for email, password, full_name, role in DEMO_USERS:
        insert_user(conn, email, hash_password(password), full_name, role,
                    status="approved", approved_by="system")


def _seed_sales(conn: DBConnection) -> None:
    cur = conn.cursor()
    try:
        for sale, items in DEMO_SALES:
            sale_id = _insert(conn, cur, "sales", sale)
            for name, quantity, unit_price in items:
                _insert(conn, cur, "sale_items", {
                    "sale_id": sale_id,
                    "medicine_id": None,
                    "medicine_name": name,
                    "quantity": quantity,
                    "unit_price": unit_price,
                    "total": quantity * unit_price,
                })
        conn.commit()
    except Exception:
        conn.rollback()
        raise


def seed_demo_data(conn: DBConnection) -> bool:
    """Load the demo records into an empty database.

    Returns True when data was inserted, False when the database already
    had records.
    """
    seed_users(conn)
    if not _is_empty(conn, "medicines"):
        return False
    for medicine in DEMO_MEDICINES:
        add_medicine(conn, medicine)
    for customer in DEMO_CUSTOMERS:
        add_customer(conn, customer)
    for supplier in DEMO_SUPPLIERS:
        add_supplier(conn, supplier)
    for prescription, medications in DEMO_PRESCRIPTIONS:
        add_prescription(conn, prescription, medications)
    _seed_sales(conn)
    for purchase, items in DEMO_PURCHASES:
        create_purchase(conn, purchase, items)
    for expense in DEMO_EXPENSES:
        add_expense(conn, expense)
    for flow in DEMO_CASH_FLOWS:
        add_cash_flow(conn, flow)
    logger.info("Seeded demo data")
    return True

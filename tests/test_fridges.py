def test_loan_and_return(container, tienda):
    fridges = container.fridge_service
    loan = fridges.create_loan(tienda['id'], 2, '2026-10-01', 'Congelador horizontal')['loan']

    assert loan['status'] == 'entregado'
    assert fridges.fridges_out() == 2

    returned = fridges.mark_returned(loan['id'], '2026-10-15')
    assert returned['ok']
    assert returned['loan']['status'] == 'devuelto'
    assert returned['loan']['return_date'] == '2026-10-15'
    assert fridges.fridges_out() == 0


def test_second_return_is_refused(container, tienda):
    loan = container.fridge_service.create_loan(tienda['id'], 1)['loan']
    container.fridge_service.mark_returned(loan['id'])

    assert container.fridge_service.mark_returned(loan['id'])['code'] == 'ALREADY_RETURNED'


def test_loan_validation(container, tienda):
    assert container.fridge_service.create_loan(999, 1)['code'] == 'NOT_FOUND'
    assert container.fridge_service.create_loan(tienda['id'], 0)['code'] == 'INVALID_AMOUNT'


def test_list_active_loans(container, tienda):
    first = container.fridge_service.create_loan(tienda['id'], 1)['loan']
    container.fridge_service.create_loan(tienda['id'], 3)
    container.fridge_service.mark_returned(first['id'])

    active = container.fridge_service.list_loans(tienda['id'], active_only=True)
    assert [l['quantity'] for l in active] == [3]
    assert len(container.fridge_service.list_loans()) == 2

def test_charge_within_limit(container, tienda):
    result = container.credit_service.charge_customer(tienda['id'], 500)
    assert result['ok']
    assert result['customer']['balance'] == 500.0


def test_charge_over_limit_is_refused_and_balance_unchanged(container, tienda):
    container.credit_service.charge_customer(tienda['id'], 450)
    result = container.credit_service.charge_customer(tienda['id'], 50.01)

    assert result['code'] == 'CREDIT_LIMIT_EXCEEDED'
    assert result['customer_id'] == tienda['id']
    assert result['available'] == 50.0
    assert container.credit_service.get_customer(tienda['id'])['balance'] == 450.0
    assert len(container.credit_service.customer_movements(tienda['id'])) == 1


def test_inactive_customer_cannot_be_charged(container, tienda):
    container.credit_service.deactivate_customer(tienda['id'])
    result = container.credit_service.charge_customer(tienda['id'], 10)
    assert result['code'] == 'CUSTOMER_INACTIVE'


def test_payment_lowers_balance(container, tienda):
    container.credit_service.charge_customer(tienda['id'], 300)
    result = container.credit_service.receive_customer_payment(tienda['id'], 120.5)

    assert result['ok']
    assert result['customer']['balance'] == 179.5
    assert container.credit_service.customer_movements(tienda['id'])[0]['type'] == 'abono'


def test_payment_above_balance_is_refused(container, tienda):
    container.credit_service.charge_customer(tienda['id'], 100)
    result = container.credit_service.receive_customer_payment(tienda['id'], 100.01)
    assert result['code'] == 'AMOUNT_EXCEEDS_BALANCE'
    assert container.credit_service.get_customer(tienda['id'])['balance'] == 100.0


def test_manual_balance_override_ignores_limit(container, tienda):
    result = container.credit_service.set_customer_balance(tienda['id'], 800)

    assert result['ok']
    assert result['customer']['balance'] == 800.0
    movement = container.credit_service.customer_movements(tienda['id'])[0]
    assert movement['type'] == 'ajuste'
    assert movement['amount'] == 800.0


def test_invalid_amounts(container, tienda):
    for bad in (0, -10, 'diez', float('nan'), None):
        assert container.credit_service.charge_customer(tienda['id'], bad)['code'] == 'INVALID_AMOUNT'


def test_promissory_note_does_not_touch_balance(container, tienda):
    container.credit_service.charge_customer(tienda['id'], 400)

    result = container.credit_service.issue_promissory_note(tienda['id'], 250, '2026-10-01')

    assert result['ok']
    assert result['note']['status'] == 'vigente'
    assert result['note']['date'] == '2026-10-01'
    assert container.credit_service.get_customer(tienda['id'])['balance'] == 400.0


def test_promissory_note_cannot_exceed_balance(container, tienda):
    container.credit_service.charge_customer(tienda['id'], 100)
    result = container.credit_service.issue_promissory_note(tienda['id'], 150)
    assert result['code'] == 'AMOUNT_EXCEEDS_BALANCE'
    assert container.credit_service.list_promissory_notes(tienda['id']) == []


def test_note_status_change(container, tienda):
    container.credit_service.charge_customer(tienda['id'], 100)
    note = container.credit_service.issue_promissory_note(tienda['id'], 100)['note']

    assert container.credit_service.set_note_status(note['id'], 'pagado')['note']['status'] == 'pagado'
    assert container.credit_service.set_note_status(note['id'], 'perdido')['code'] == 'INVALID_INPUT'


def test_credit_payments_never_flip_status(container, tienda):
    credit = container.credit_service.create_credit(tienda['id'], 1000, 'Mercancía temporada')['credit']

    container.credit_service.record_credit_payment(credit['id'], 400)
    result = container.credit_service.record_credit_payment(credit['id'], 300)

    assert result['credit']['paid'] == 700.0
    assert result['credit']['remaining'] == 300.0
    assert result['credit']['status'] == 'pendiente'

    result = container.credit_service.set_credit_status(credit['id'], 'pagado')
    assert result['credit']['status'] == 'pagado'
    assert result['credit']['remaining'] == 300.0


def test_credit_overpayment_floors_remaining_at_zero(container, tienda):
    credit = container.credit_service.create_credit(tienda['id'], 100)['credit']
    result = container.credit_service.record_credit_payment(credit['id'], 150)

    assert result['credit']['remaining'] == 0.0
    assert result['credit']['status'] == 'pendiente'
    assert [p['id'] for p in result['credit']['payments']] == [1]


def test_credit_is_independent_of_balance(container, tienda):
    container.credit_service.create_credit(tienda['id'], 1000)
    assert container.credit_service.get_customer(tienda['id'])['balance'] == 0.0


def test_total_receivable(container, tienda):
    container.credit_service.charge_customer(tienda['id'], 200)
    credit = container.credit_service.create_credit(tienda['id'], 1000)['credit']
    container.credit_service.record_credit_payment(credit['id'], 400)
    paid = container.credit_service.create_credit(tienda['id'], 50)['credit']
    container.credit_service.set_credit_status(paid['id'], 'pagado')

    assert container.credit_service.total_receivable() == 800.0


def test_sub_cent_charge_is_refused(container, tienda):
    result = container.credit_service.charge_customer(tienda['id'], 0.004)

    assert result['code'] == 'INVALID_AMOUNT'
    assert container.credit_service.get_customer(tienda['id'])['balance'] == 0.0
    assert container.credit_service.customer_movements(tienda['id']) == []


def test_available_credit_reported_when_balance_above_limit(container, tienda):
    container.credit_service.set_customer_balance(tienda['id'], 600)
    result = container.credit_service.charge_customer(tienda['id'], 1)

    assert result['code'] == 'CREDIT_LIMIT_EXCEEDED'
    assert result['available'] == 0.0

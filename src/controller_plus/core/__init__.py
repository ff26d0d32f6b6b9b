"""UI-independent core: observables, load tracking, error dispatch, controllers."""

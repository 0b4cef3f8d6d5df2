"""Story-independent game model: definitions, state and conditions."""
